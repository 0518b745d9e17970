import os
import unittest

from nlopt import Netlist, StructuralError, VerificationError, from_file, library
from nlopt.analysis import MultiDiGraph, SimpleCombDepth
from nlopt.passes import Passes, Pipeline, PipelineState


def three_cycle():
    """A -> B -> C -> A, each instance a buffer."""
    n = Netlist()
    nets = {name: n.add_net(f"{name}_out") for name in "ABC"}
    n.add_instance(library["BUF"], "A", inputs=[nets["C"]], outputs=[nets["A"]])
    n.add_instance(library["BUF"], "B", inputs=[nets["A"]], outputs=[nets["B"]])
    n.add_instance(library["BUF"], "C", inputs=[nets["B"]], outputs=[nets["C"]])
    return n


class TestPasses(unittest.TestCase):
    def setUp(self):
        self.test_path = f"{os.path.dirname(__file__)}/../netlists"
        self.counter = from_file(f"{self.test_path}/counter.v")
        self.ring = from_file(f"{self.test_path}/ring.v")

    def run_pass(self, netlist, name):
        return Passes(name).get_pass().run(netlist)

    def test_names(self):
        self.assertEqual(
            [p.value for p in Passes],
            [
                "print",
                "dot-graph",
                "clean",
                "disconnect-registers",
                "disconnect-arc-set",
                "mark-arc-set",
                "rename-nets",
                "report-sccs",
                "report-depth",
            ],
        )
        for p in Passes:
            self.assertEqual(p.get_pass().name, p.value)
        self.assertRaises(ValueError, Passes, "optimize")

    def test_print(self):
        report = self.run_pass(self.ring, "print")
        self.assertTrue(report.startswith("module ring (a, y);"))

    def test_dot_graph(self):
        report = self.run_pass(self.ring, "dot-graph")
        self.assertTrue(report.startswith("digraph"))

    def test_clean(self):
        self.assertEqual(
            self.run_pass(self.counter, "clean"), "Cleaned 2 objects. 12 remain."
        )
        self.assertNotIn("gnd_i", self.counter)
        self.assertEqual(
            self.run_pass(self.counter, "clean"), "Cleaned 0 objects. 12 remain."
        )

    def test_disconnect_registers(self):
        self.assertEqual(
            self.run_pass(self.counter, "disconnect-registers"),
            "Disconnected 2 registers",
        )
        for reg in self.counter.matches(lambda i: i.is_seq()):
            self.assertTrue(all(p.net is None for p in reg.inputs()))
        self.assertEqual(
            self.run_pass(self.counter, "disconnect-registers"),
            "Disconnected 0 registers",
        )
        self.assertEqual(
            self.run_pass(self.counter, "clean"), "Cleaned 8 objects. 6 remain."
        )

    def test_report_sccs(self):
        self.assertEqual(
            self.run_pass(self.counter, "report-sccs"),
            "Netlist contains 2 non-trivial strongly connected components "
            "(4 total)",
        )
        self.assertEqual(
            self.run_pass(Netlist(), "report-sccs"),
            "Netlist contains 0 non-trivial strongly connected components "
            "(0 total)",
        )

    def test_report_depth(self):
        self.assertEqual(
            self.run_pass(self.counter, "report-depth"),
            "Maximum combinational depth: 1",
        )
        self.assertEqual(
            self.run_pass(self.ring, "report-depth"),
            "Maximum combinational depth: undefined",
        )

    def test_disconnect_arc_set(self):
        self.assertEqual(
            self.run_pass(self.ring, "disconnect-arc-set"), "Disconnected 1 arcs"
        )
        self.assertIsNone(self.ring.get_instance("u0").input("I1").net)
        self.assertEqual(
            self.run_pass(self.ring, "report-depth"),
            "Maximum combinational depth: 4",
        )
        self.assertEqual(
            self.run_pass(self.ring, "disconnect-arc-set"), "Disconnected 0 arcs"
        )

    def test_mark_arc_set(self):
        self.assertEqual(self.run_pass(self.ring, "mark-arc-set"), "Marked 1 arcs")
        self.assertIn("arc_u2", self.ring)
        self.assertNotIn("u2", self.ring)
        name = self.ring.get_instance("arc_u2").get_instance_name()
        self.assertEqual(name.get_name(), "u2")
        self.ring.verify()

    def test_mark_arc_set_shared_source(self):
        # both inputs of g0 read its own output
        n = Netlist()
        t = n.add_net("t")
        n.add_instance(library["AND"], "g0", inputs=[t, t], outputs=[t])
        arcs = n.get_analysis(MultiDiGraph).greedy_feedback_arcs()
        self.assertEqual(len(arcs), 2)
        self.assertEqual(self.run_pass(n, "mark-arc-set"), "Marked 2 arcs")
        self.assertIn("arc_g0", n)
        n.verify()

    def test_reports_keep_analyses(self):
        for netlist in (self.counter, self.ring):
            netlist.get_analysis(MultiDiGraph)
            netlist.get_analysis(SimpleCombDepth)
            gen = netlist.generation
            for name in ("report-sccs", "report-depth", "print", "dot-graph"):
                self.run_pass(netlist, name)
                self.assertEqual(netlist.generation, gen)
                self.assertTrue(netlist.analyses.is_fresh(MultiDiGraph))
                self.assertTrue(netlist.analyses.is_fresh(SimpleCombDepth))

    def test_mutations_invalidate(self):
        cases = [
            (self.counter, "disconnect-registers"),
            (self.counter, "clean"),
            (self.ring, "disconnect-arc-set"),
            (from_file(f"{self.test_path}/ring.v"), "mark-arc-set"),
            (from_file(f"{self.test_path}/ring.v"), "rename-nets"),
        ]
        for netlist, name in cases:
            netlist.get_analysis(MultiDiGraph)
            gen = netlist.generation
            self.run_pass(netlist, name)
            self.assertGreater(netlist.generation, gen, name)
            self.assertFalse(netlist.analyses.is_fresh(MultiDiGraph), name)

    def test_rename_nets(self):
        self.assertEqual(self.run_pass(self.ring, "rename-nets"), "Renamed 9 cells")
        names = [str(i.name) for i in self.ring.instances()]
        names += [str(net.name) for net in self.ring.nets()]
        self.assertEqual(len(set(names)), len(names))
        self.assertIn("__0__", self.ring)
        self.assertIn("a", self.ring)
        self.assertIn("y", self.ring)
        self.ring.verify()


class TestPipeline(unittest.TestCase):
    def test_three_cycle(self):
        n = three_cycle()
        passes = ["report-sccs", "disconnect-arc-set", "report-sccs", "report-depth"]
        p = Pipeline(n, passes)
        self.assertIs(p.state, PipelineState.IDLE)
        self.assertEqual(p.run(), "Maximum combinational depth: 3")
        self.assertIs(p.state, PipelineState.DONE)
        self.assertEqual(p.index, 3)
        self.assertEqual(
            p.reports,
            [
                "Netlist contains 1 non-trivial strongly connected components "
                "(1 total)",
                "Disconnected 1 arcs",
                "Netlist contains 0 non-trivial strongly connected components "
                "(3 total)",
                "Maximum combinational depth: 3",
            ],
        )
        self.assertIsNone(p.error)

    def test_enum_passes(self):
        p = Pipeline(three_cycle(), [Passes.REPORT_DEPTH], verify_each=True)
        self.assertEqual(p.run(), "Maximum combinational depth: undefined")

    def test_empty(self):
        n = three_cycle()
        p = Pipeline(n, [])
        self.assertIsNone(p.run())
        self.assertIs(p.state, PipelineState.DONE)
        self.assertEqual(p.reports, [])

        n._nets[0].consumers.append((1, 0))
        p = Pipeline(n, [])
        self.assertRaises(VerificationError, p.run)
        self.assertIs(p.state, PipelineState.FAILED)

    def test_runs_once(self):
        p = Pipeline(three_cycle(), ["report-sccs"])
        p.run()
        self.assertRaises(RuntimeError, p.run)

    def test_verification_failure(self):
        n = three_cycle()
        n._nets[0].consumers.append((1, 0))
        p = Pipeline(n, ["report-sccs", "report-depth"])
        self.assertRaises(VerificationError, p.run)
        self.assertIs(p.state, PipelineState.FAILED)
        self.assertIsInstance(p.error, VerificationError)
        # only the last pass is verified by default
        self.assertEqual(p.index, 1)
        self.assertEqual(len(p.reports), 2)

    def test_verify_each(self):
        n = three_cycle()
        n._nets[0].consumers.append((1, 0))
        p = Pipeline(n, ["report-sccs", "report-depth"], verify_each=True)
        self.assertRaises(VerificationError, p.run)
        self.assertEqual(p.index, 0)
        self.assertEqual(len(p.reports), 1)

    def test_pass_failure(self):
        n = three_cycle()
        n.add_instance(library["BUF"], "arc_C")
        p = Pipeline(n, ["mark-arc-set", "report-sccs"])
        self.assertRaises(StructuralError, p.run)
        self.assertIs(p.state, PipelineState.FAILED)
        self.assertEqual(p.index, 0)
        self.assertEqual(p.reports, [])
