import unittest

from plc.lang.error import DuplicateDeclaration, UndefinedVariable
from plc.runtime.environment import Environment
from plc.syntax.lexical import Position


class EnvironmentTestCase(unittest.TestCase):

    def test_define_and_get(self):
        env = Environment()
        env.define("x", 1)
        env.define("y", None)
        self.assertEqual(1, env.get("x"))
        self.assertIsNone(env.get("y"))
        self.assertIs(env, env.resolve("y"))
        self.assertIsNone(env.resolve("z"))

    def test_duplicate_declaration(self):
        env = Environment()
        env.define("x", 1)
        with self.assertRaises(DuplicateDeclaration) as ctx:
            env.define("x", 2, Position(2, 5, 14))
        self.assertEqual(Position(2, 5, 14), ctx.exception.position)
        self.assertEqual(1, env.get("x"))

    def test_shadowing(self):
        outer = Environment()
        outer.define("x", "outer")
        inner = outer.child()
        inner.define("x", "inner")

        self.assertEqual("inner", inner.get("x"))
        self.assertEqual("outer", outer.get("x"))
        self.assertIs(outer, inner.parent)

    def test_lookup_walks_outward(self):
        root = Environment()
        root.define("a", 1)
        middle = root.child()
        middle.define("b", 2)
        leaf = middle.child()

        self.assertEqual(1, leaf.get("a"))
        self.assertEqual(2, leaf.get("b"))
        self.assertIs(root, leaf.resolve("a"))
        self.assertIsNone(leaf.resolve("c"))
        self.assertRaises(UndefinedVariable, middle.get, "c")

    def test_set(self):
        root = Environment()
        root.define("x", 1)
        inner = root.child()

        inner.set("x", 2)
        self.assertEqual(2, root.get("x"))
        self.assertNotIn("x", inner.values)  # set never declares

        with self.assertRaises(UndefinedVariable) as ctx:
            inner.set("y", 3, Position(1, 1, 0))
        self.assertEqual("undefined variable 'y'", str(ctx.exception))
        self.assertIsNone(inner.resolve("y"))

    def test_set_targets_innermost_binding(self):
        root = Environment()
        root.define("x", "root")
        inner = root.child()
        inner.define("x", "inner")
        leaf = inner.child()

        leaf.set("x", "changed")
        self.assertEqual("changed", inner.get("x"))
        self.assertEqual("root", root.get("x"))

    def test_child_does_not_leak(self):
        root = Environment()
        block = root.child()
        block.define("local", True)

        self.assertRaises(UndefinedVariable, root.get, "local")


if __name__ == '__main__':
    unittest.main()
