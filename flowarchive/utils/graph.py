# utils/graph.py
from typing import Dict, Any, List
import networkx as nx
from networkx.exception import NetworkXUnfeasible

TRIGGER_MARKER = "trigger"


def _nodes(workflow: Dict[str, Any]) -> List[dict]:
    nodes = workflow.get("nodes") or []
    if not isinstance(nodes, list):
        return []
    return [n for n in nodes if isinstance(n, dict)]


def build_dag(workflow: Dict[str, Any]) -> nx.DiGraph:
    """
    Build a directed graph keyed by node name from n8n native json (nodes + connections).
    connections[<srcName>][<stream>] is a list of paths, each path a list of
    {node: <dstName>, type: "main", index: 0} hops (a bare hop dict is tolerated).
    """
    G = nx.DiGraph()
    for n in _nodes(workflow):
        name = n.get("name")
        if isinstance(name, str) and name:
            G.add_node(name, type=n.get("type", ""))

    conns = workflow.get("connections") or {}
    if not isinstance(conns, dict):
        return G

    for src_name, outs in conns.items():
        if src_name not in G or not isinstance(outs, dict):
            continue
        for _stream, paths in outs.items():
            if not isinstance(paths, list):
                continue
            for path in paths:
                hops = [path] if isinstance(path, dict) else path
                if not isinstance(hops, list):
                    continue
                for hop in hops:
                    if not isinstance(hop, dict):
                        continue
                    dst = hop.get("node")
                    if isinstance(dst, str) and dst in G:
                        G.add_edge(src_name, dst)
    return G


def is_trigger(node: dict) -> bool:
    t = (str(node.get("type") or "") + " " + str(node.get("name") or "")).lower()
    return TRIGGER_MARKER in t


def trigger_nodes(workflow: Dict[str, Any]) -> List[dict]:
    """Nodes whose type or name mentions 'trigger', in declaration order."""
    return [n for n in _nodes(workflow) if is_trigger(n)]


def execution_order(workflow: Dict[str, Any]) -> List[str]:
    """
    Node names in a plausible run order: topological order of the connection graph,
    ties broken by declaration order. Cyclic graphs fall back to declaration order.
    """
    G = build_dag(workflow)
    declared = list(G.nodes)
    rank = {name: i for i, name in enumerate(declared)}
    try:
        return list(nx.lexicographical_topological_sort(G, key=lambda n: rank[n]))
    except NetworkXUnfeasible:
        return declared
