"""Tests for the topology inference engine."""

from engine.infer import (
    EDGE_AGGREGATE, EDGE_MEMBER, NODE_AGGREGATE, NODE_PORT, TopologyBuilder,
    aggregate_node_id, device_node_id, port_node_id,
)


def _endpoints(edge):
    return {edge.source, edge.target}


class TestPruning:
    def test_chain_removes_transitive_mac(self, device_index):
        # A -- B -- C, B's port towards A does not report A
        devices = device_index([
            ("A", ["a"], {"p1": ["b", "c"]}),
            ("B", ["b"], {"b1": [], "b2": ["c"]}),
            ("C", ["c"]),
        ])
        pruned = TopologyBuilder().prune(devices)
        assert sorted(pruned.get("a").ports["p1"].visible) == ["b"]

    def test_mutually_confirmed_port_is_kept(self, device_index):
        devices = device_index([
            ("A", ["a"], {"p1": ["b", "c"]}),
            ("B", ["b"], {"b1": ["a"], "b2": ["c"]}),
            ("C", ["c"]),
        ])
        pruned = TopologyBuilder().prune(devices)
        # b1 sees A back so only b2's view is stripped
        assert sorted(pruned.get("a").ports["p1"].visible) == ["b"]
        assert sorted(pruned.get("b").ports["b1"].visible) == ["a"]

    def test_decisions_use_original_state(self, device_index):
        # Y is pruned first and loses "x" from q; X must still treat q as
        # seeing it back, otherwise "w" would be stripped from X's view
        devices = device_index([
            ("Y", ["y"], {"q": ["x", "w"], "r": []}),
            ("W", ["w"], {"s": ["x"]}),
            ("X", ["x"], {"p": ["y", "w"]}),
        ])
        pruned = TopologyBuilder().prune(devices)
        assert sorted(pruned.get("y").ports["q"].visible) == ["w"]
        assert sorted(pruned.get("x").ports["p"].visible) == ["w", "y"]

    def test_original_index_untouched(self, device_index):
        devices = device_index([
            ("A", ["a"], {"p1": ["b", "c"]}),
            ("B", ["b"], {"b1": [], "b2": ["c"]}),
            ("C", ["c"]),
        ])
        TopologyBuilder().build(devices)
        assert sorted(devices.get("a").ports["p1"].visible) == ["b", "c"]

    def test_own_mac_prunes_like_any_other(self, device_index):
        # p1 reports A itself; p2 does not see A, so what p2 sees lies behind it
        devices = device_index([("A", ["a"], {"p1": ["a", "n1"], "p2": ["n1"]})])
        pruned = TopologyBuilder().prune(devices)
        assert sorted(pruned.get("a").ports["p1"].visible) == ["a"]
        assert sorted(pruned.get("a").ports["p2"].visible) == ["n1"]


class TestAdjacency:
    def test_port_to_port(self, device_index):
        topology = TopologyBuilder().build(device_index([
            ("D1", ["m1"], {"p1": ["m2"]}),
            ("D2", ["m2"], {"p1": ["m1"]}),
        ]))
        adjacencies = topology.adjacencies()
        assert len(adjacencies) == 1
        assert _endpoints(adjacencies[0]) == {port_node_id("D1", "p1"), port_node_id("D2", "p1")}
        assert topology.aggregates() == []

    def test_one_sided_attaches_to_device_node(self, device_index):
        topology = TopologyBuilder().build(device_index([
            ("sw", ["s"], {"lan3": ["ap"]}),
            ("ap", ["ap"]),
        ]))
        adjacencies = topology.adjacencies()
        assert len(adjacencies) == 1
        assert _endpoints(adjacencies[0]) == {port_node_id("sw", "lan3"), device_node_id("ap")}

    def test_device_nodes_linked_when_neither_side_sees_the_other(self, device_index):
        topology = TopologyBuilder().build(device_index([
            ("a", ["a"], {"p": []}),
            ("b", ["b"]),
        ]))
        (edge,) = topology.adjacencies()
        assert _endpoints(edge) == {device_node_id("a"), device_node_id("b")}
        assert len(topology.nodes) == 2

    def test_every_pair_is_linked(self, device_index):
        topology = TopologyBuilder().build(device_index([
            ("A", ["a"], {"p": ["b"]}),
            ("B", ["b"], {"q": ["a"]}),
            ("C", ["c"]),
        ]))
        links = {frozenset(_endpoints(e)) for e in topology.adjacencies()}
        assert len(topology.adjacencies()) == 3 * 2 // 2
        assert links == {
            frozenset({port_node_id("A", "p"), port_node_id("B", "q")}),
            frozenset({device_node_id("A"), device_node_id("C")}),
            frozenset({device_node_id("B"), device_node_id("C")}),
        }

    def test_pair_count_for_larger_network(self, device_index):
        devices = device_index([(f"d{i}", [f"m{i}"]) for i in range(6)])
        assert len(TopologyBuilder().build(devices).adjacencies()) == 6 * 5 // 2

    def test_require_visibility_skips_unseen_pairs(self, device_index):
        topology = TopologyBuilder(require_visibility=True).build(device_index([
            ("A", ["a"], {"p": ["b"]}),
            ("B", ["b"], {"q": ["a"]}),
            ("C", ["c"]),
        ]))
        (edge,) = topology.adjacencies()
        assert _endpoints(edge) == {port_node_id("A", "p"), port_node_id("B", "q")}

    def test_chain_links_neighbours_through_ports(self, device_index):
        topology = TopologyBuilder().build(device_index([
            ("A", ["a"], {"p1": ["b", "c"]}),
            ("B", ["b"], {"b1": ["a"], "b2": ["c"]}),
            ("C", ["c"], {"c1": ["b", "a"]}),
        ]))
        links = {frozenset(_endpoints(e)) for e in topology.adjacencies()}
        assert frozenset({port_node_id("A", "p1"), port_node_id("B", "b1")}) in links
        assert frozenset({port_node_id("B", "b2"), port_node_id("C", "c1")}) in links
        assert not any(port_node_id("A", "p1") in link and port_node_id("C", "c1") in link
                       for link in links)
        assert frozenset({device_node_id("A"), device_node_id("C")}) in links
        assert len(links) == 3

    def test_first_matching_port_wins(self, device_index):
        topology = TopologyBuilder().build(device_index([
            ("A", ["a"], {"first": ["b"], "second": ["b"]}),
            ("B", ["b"], {"p": ["a"]}),
        ]))
        (edge,) = topology.adjacencies()
        assert port_node_id("A", "first") in _endpoints(edge)


class TestNodesAndClusters:
    def test_clusters_only_for_devices_that_see(self, device_index):
        topology = TopologyBuilder().build(device_index([
            ("sw", ["s"], {"lan1": ["x"], "lan2": []}),
            ("idle", ["i"], {"p": []}),
        ]))
        cluster = topology.cluster_for("sw")
        assert cluster.port_nodes == [port_node_id("sw", "lan1")]
        assert topology.cluster_for("idle") is None
        assert port_node_id("sw", "lan2") not in topology.nodes
        members = [e for e in topology.edges if e.kind == EDGE_MEMBER]
        assert [_endpoints(e) for e in members] == [{device_node_id("sw"), port_node_id("sw", "lan1")}]

    def test_display_name_used_as_label(self, device_index):
        devices = device_index([("r1", ["m"])])
        devices.get("m").name = "Main router"
        topology = TopologyBuilder().build(devices)
        assert topology.nodes[device_node_id("r1")].label == "Main router"


class TestUnknownNeighbors:
    def test_three_unknown_macs(self, device_index):
        topology = TopologyBuilder().build(device_index([
            ("ap", ["ap"], {"wlan0": ["u1", "u2", "u3"]}),
        ]))
        aggregates = topology.aggregates()
        assert len(aggregates) == 1
        node = aggregates[0]
        assert node.kind == NODE_AGGREGATE
        assert node.count == 3
        assert node.label == "3 devices"

        edges = [e for e in topology.edges if e.kind == EDGE_AGGREGATE]
        assert len(edges) == 1
        assert _endpoints(edges[0]) == {port_node_id("ap", "wlan0"), aggregate_node_id("ap", "wlan0")}

    def test_known_macs_not_counted(self, device_index):
        topology = TopologyBuilder().build(device_index([
            ("sw", ["s"], {"lan1": ["r", "u1"]}),
            ("r", ["r"]),
        ]))
        (node,) = topology.aggregates()
        assert node.count == 1
        assert node.label == "1 device"

    def test_no_aggregate_without_unknowns(self, device_index):
        topology = TopologyBuilder().build(device_index([
            ("sw", ["s"], {"lan1": ["r"]}),
            ("r", ["r"]),
        ]))
        assert topology.aggregates() == []
        assert topology.nodes_of_kind(NODE_PORT)[0].port_id == "lan1"

    def test_summary(self, device_index):
        topology = TopologyBuilder().build(device_index([
            ("sw", ["s"], {"lan1": ["r", "u1", "u2"]}),
            ("r", ["r"]),
        ]))
        summary = topology.to_dict()["summary"]
        assert summary == {
            "device_count": 2,
            "port_count": 1,
            "adjacency_count": 1,
            "unknown_neighbor_count": 2,
        }
