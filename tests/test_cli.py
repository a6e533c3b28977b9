import io
import os
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout

from erdforge.cli import main
from erdforge.codec import load_diagram


class TestCli(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmpdir.cleanup)
        self.diagram = os.path.join(self.tmpdir.name, "sample.json")

    def test_sample_then_ddl(self):
        self.assertEqual(main(["sample", "-o", self.diagram]), 0)
        out = io.StringIO()
        with redirect_stdout(out):
            code = main(["ddl", self.diagram, "--dialect", "Tibero"])
        self.assertEqual(code, 0)
        self.assertIn("-- Database: Tibero", out.getvalue())
        self.assertIn("CREATE TABLE MEMBER2 (", out.getvalue())

    def test_layout_rewrites_positions(self):
        main(["sample", "-o", self.diagram])
        self.assertEqual(main(["layout", self.diagram]), 0)
        first = load_diagram(self.diagram).tables[0]
        self.assertEqual((first.x, first.y), (50, 50))

    def test_errors_exit_with_one(self):
        main(["sample", "-o", self.diagram])
        err = io.StringIO()
        with redirect_stderr(err):
            self.assertEqual(main(["ddl", self.diagram, "--dialect", "SQLite"]), 1)
            self.assertEqual(main(["ddl", os.path.join(self.tmpdir.name, "missing.json")]), 1)
        self.assertIn("Unsupported database type: SQLite", err.getvalue())

    def test_import_failure_exits_with_one(self):
        err = io.StringIO()
        with redirect_stderr(err):
            self.assertEqual(main(["import", "--db-type", "Access"]), 1)
        self.assertIn("Import failed", err.getvalue())


if __name__ == "__main__":
    unittest.main()
