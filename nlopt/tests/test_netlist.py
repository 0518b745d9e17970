import unittest

from nlopt import Identifier, Netlist, StructuralError, format_id, library
from nlopt.analysis import MultiDiGraph


class TestIdentifier(unittest.TestCase):
    def test_prefix(self):
        i = Identifier("arc_") + Identifier("u1")
        self.assertEqual(i, "arc_u1")
        self.assertEqual(i.get_name(), "u1")
        self.assertEqual(i.get_prefix(), "arc_")
        self.assertEqual(Identifier("u1", "arc_"), Identifier("arc_u1"))
        self.assertEqual(hash(i), hash("arc_u1"))

    def test_order(self):
        names = [Identifier("b"), Identifier("a", "c_"), Identifier("a")]
        self.assertEqual([str(n) for n in sorted(names)], ["a", "b", "c_a"])

    def test_simple(self):
        self.assertTrue(Identifier("n_1$").is_simple())
        self.assertFalse(Identifier("a[3]").is_simple())
        self.assertFalse(Identifier("$auto$12").is_simple())

    def test_format_id(self):
        self.assertEqual(format_id("__{i}__", i=7), "__7__")


class TestNetlist(unittest.TestCase):
    def setUp(self):
        # a, b -> g0 (AND) -> t -> g1 (NOT) -> y, plus a register on t
        self.n = Netlist("top")
        self.a = self.n.add_input("a")
        self.b = self.n.add_input("b")
        self.y = self.n.add_output("y")
        self.t = self.n.add_net("t")
        self.g0 = self.n.add_instance(
            library["AND"], "g0", inputs=[self.a, self.b], outputs=[self.t]
        )
        self.g1 = self.n.add_instance(
            library["NOT"], "g1", inputs={"A": "t"}, outputs={"Y": "y"}
        )

    def test_construction(self):
        self.assertEqual(len(self.n), 6)
        self.assertIn("g0", self.n)
        self.assertIn("t", self.n)
        self.assertEqual(self.n.get_net("t").driver.instance, self.g0)
        self.assertEqual(self.g1.fanin(), [self.g0])
        self.assertEqual(self.g0.fanout(), [self.g1])
        self.assertEqual(
            [str(p.instance.name) for p in self.t.consumers()], ["g1"]
        )
        self.assertEqual(self.n.inputs(), [self.a, self.b])
        self.assertEqual(self.n.outputs(), [self.y])
        self.n.verify()

    def test_bus_ports(self):
        bits = self.n.add_input("d", 3, 0)
        self.assertEqual([str(b.name) for b in bits], ["d[3]", "d[2]", "d[1]", "d[0]"])
        self.assertEqual(self.n.module_ports()[-1], ("d", "input", 3, 0))
        self.assertRaises(StructuralError, self.n.add_output, "d")
        self.n.order_ports(["y", "d", "a", "b"])
        self.assertEqual([p[0] for p in self.n.module_ports()], ["y", "d", "a", "b"])
        self.n.verify()

    def test_name_collisions(self):
        self.assertRaises(StructuralError, self.n.add_net, "g0")
        self.assertRaises(
            StructuralError, self.n.add_instance, library["BUF"], "t"
        )
        self.assertRaises(StructuralError, self.n.get_instance, "t")
        self.assertRaises(StructuralError, self.n.get_net, "missing")
        self.assertRaises(StructuralError, self.g0.set_instance_name, "g1")
        self.assertEqual(len(self.n), 6)

    def test_add_instance_errors(self):
        # a second driver
        self.assertRaises(
            StructuralError,
            self.n.add_instance,
            library["BUF"],
            "g2",
            inputs=[self.a],
            outputs=[self.t],
        )
        # driving a module input
        self.assertRaises(
            StructuralError,
            self.n.add_instance,
            library["BUF"],
            "g2",
            outputs=[self.a],
        )
        # too many connections and unknown ports
        self.assertRaises(
            StructuralError,
            self.n.add_instance,
            library["BUF"],
            "g2",
            inputs=[self.a, self.b],
        )
        self.assertRaises(
            StructuralError,
            self.n.add_instance,
            library["BUF"],
            "g2",
            inputs={"Z": self.a},
        )
        self.assertNotIn("g2", self.n)
        self.n.verify()

    def test_unconnected_ports(self):
        r = self.n.add_instance(library["DFF"], "r0", inputs={"D": self.t})
        self.assertIsNone(r.input("C").net)
        self.assertEqual(r.input("D").net, self.t)
        self.assertIsNone(r.output("Q").net)
        self.assertRaises(StructuralError, r.input, "Q")
        r.input("C").connect(self.a)
        self.assertRaises(StructuralError, r.input("C").connect, self.b)
        self.n.verify()

    def test_disconnect(self):
        port = self.g0.input("B")
        gen = self.n.generation
        self.assertEqual(self.n.disconnect(port), self.b)
        self.assertEqual(self.n.generation, gen + 1)
        self.assertIsNone(port.net)
        self.assertEqual(self.b.consumers(), [])

        # disconnecting again changes nothing
        self.assertIsNone(port.disconnect())
        self.assertEqual(self.n.generation, gen + 1)
        self.n.verify()

    def test_output_port_not_mutable(self):
        gen = self.n.generation
        self.assertRaises(StructuralError, self.n.disconnect, self.g1.outputs()[0])
        self.assertRaises(
            StructuralError, self.n.connect, self.g1.outputs()[0], self.a
        )
        self.assertRaises(StructuralError, self.n.disconnect, self.g0.output("Y"))
        self.assertEqual(self.g1.input("A").net, self.t)
        self.assertEqual(self.g0.input("A").net, self.a)
        self.assertEqual(self.a.consumers(), [self.g0.input("A")])
        self.assertEqual(self.n.generation, gen)
        self.n.verify()

    def test_matches(self):
        regs = self.n.matches(lambda i: i.is_seq())
        self.assertEqual(list(regs), [])
        self.n.add_instance(library["DFF"], "r0", inputs={"D": self.t})
        self.assertEqual([str(r.name) for r in regs], ["r0"])
        self.assertEqual([str(r.name) for r in regs], ["r0"])

    def test_remap(self):
        self.n.get_analysis(MultiDiGraph)
        self.n.remap_input(self.g1, 0, "I")
        self.n.remap_output(self.g1, 0, "O")
        self.assertEqual(self.g1.cell.ports(), ["O", "I"])
        self.assertEqual(library["NOT"].ports(), ["Y", "A"])
        self.assertTrue(self.n.analyses.is_fresh(MultiDiGraph))
        self.assertRaises(StructuralError, self.n.remap_input, self.g1, 1, "B")

    def test_set_instance_name(self):
        self.g0.set_instance_name(Identifier("arc_") + self.g0.get_instance_name())
        self.assertEqual(self.g0.name, "arc_g0")
        self.assertNotIn("g0", self.n)
        self.assertEqual(self.n.get_instance("arc_g0"), self.g0)
        self.n.verify()

    def test_rename_nets(self):
        count = self.n.rename_nets(lambda _, i: format_id("__{i}__", i=i))
        # t, then g0 and g1; port nets keep their names
        self.assertEqual(count, 3)
        self.assertEqual(self.t.name, "__0__")
        self.assertEqual(self.g0.name, "__1__")
        self.assertEqual(self.g1.name, "__2__")
        self.assertEqual(self.a.name, "a")
        self.n.verify()

    def test_rename_nets_collision(self):
        self.assertRaises(StructuralError, self.n.rename_nets, lambda _, i: "a")
        self.assertRaises(StructuralError, self.n.rename_nets, lambda _, i: "x")
        self.assertEqual(self.t.name, "t")
        self.assertEqual(self.g0.name, "g0")
        self.n.verify()

    def test_clean(self):
        u = self.n.add_net("u")
        self.n.add_instance(library["BUF"], "dead", inputs=[self.t], outputs=[u])
        self.n.add_net("floating")
        removed = self.n.clean()
        self.assertEqual([str(r) for r in removed], ["dead", "u", "floating"])
        self.assertEqual(self.t.consumers(), [self.g1.input("A")])
        self.assertEqual(len(self.n), 6)
        self.n.verify()

        # cleaning twice removes nothing
        gen = self.n.generation
        self.assertEqual(self.n.clean(), [])
        self.assertEqual(self.n.generation, gen)

    def test_clean_keeps_ports(self):
        self.n.disconnect(self.g1.input("A"))
        removed = self.n.clean()
        self.assertEqual([str(r) for r in removed], ["g0", "t"])
        self.assertIn("a", self.n)
        self.assertIn("g1", self.n)
        self.n.verify()

    def test_uid(self):
        self.assertEqual(self.n.uid("z"), "z")
        self.assertEqual(self.n.uid("g0"), "g0_0")
        self.n.add_net("g0_0")
        self.assertEqual(self.n.uid("g0"), "g0_1")

    def test_removed_handles(self):
        self.n.disconnect(self.g1.input("A"))
        g0 = self.g0
        self.n.clean()
        self.assertRaises(StructuralError, lambda: g0.name)
        self.assertIn("removed", repr(g0))


class TestAnalysisCache(unittest.TestCase):
    def setUp(self):
        self.n = Netlist()
        self.w = self.n.add_net("w")
        self.n.add_instance(library["BUF"], "b0", inputs=[self.w], outputs=[self.w])

    def test_cached(self):
        g = self.n.get_analysis(MultiDiGraph)
        self.assertIs(self.n.get_analysis(MultiDiGraph), g)
        self.assertTrue(self.n.analyses.is_fresh(MultiDiGraph))
        self.assertEqual(len(self.n.analyses), 1)

    def test_invalidated(self):
        g = self.n.get_analysis(MultiDiGraph)
        self.n.add_net("x")
        self.assertFalse(self.n.analyses.is_fresh(MultiDiGraph))
        self.assertTrue(g.is_stale())
        self.assertRaises(StructuralError, g.sccs)
        g2 = self.n.get_analysis(MultiDiGraph)
        self.assertIsNot(g, g2)
        self.assertEqual(len(g2.arcs()), 1)

    def test_unknown_kind(self):
        from nlopt import AnalysisUnavailable

        self.assertRaises(AnalysisUnavailable, self.n.get_analysis, int)
        self.assertRaises(AnalysisUnavailable, self.n.get_analysis, "depth")
