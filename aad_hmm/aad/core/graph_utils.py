"""
Tape introspection helpers.
Used for printing and analysing the structure of a recorded computation.
"""

import numpy as np
from typing import Dict
from collections import Counter


def get_graph_stats(tape) -> Dict:
    """
    Collect tape statistics (no printing).

    Edges are operand references reported by each node's operands(); leaves
    and adapter outputs have none.

    Returns:
        dict with node/edge counts, fan-in / fan-out, per-op counts and arena usage
    """
    if not tape.nodes:
        return {
            'nodes': 0,
            'edges': 0,
            'max_fan_in': 0,
            'avg_fan_in': 0.0,
            'max_fan_out': 0,
            'avg_fan_out': 0.0,
            'operations': {},
            'leaves': 0,
            'arena_bytes': tape.arena.bytes_used,
            'arena_allocations': tape.arena.n_allocations,
        }

    n_nodes = len(tape.nodes)
    operands = [node.operands() for node in tape.nodes]

    # Fan-in
    fan_ins = [len(ops) for ops in operands]
    n_edges = sum(fan_ins)

    # Fan-out
    fan_outs = [0] * n_nodes
    for ops in operands:
        for parent in ops:
            if parent.index is not None and parent.index < n_nodes:
                fan_outs[parent.index] += 1

    # Operation types
    op_counter = Counter(node.op_tag for node in tape.nodes)

    return {
        'nodes': n_nodes,
        'edges': n_edges,
        'max_fan_in': max(fan_ins),
        'avg_fan_in': float(np.mean(fan_ins)),
        'max_fan_out': max(fan_outs),
        'avg_fan_out': float(np.mean(fan_outs)),
        'operations': dict(op_counter),
        'leaves': sum(1 for ops in operands if not ops),
        'arena_bytes': tape.arena.bytes_used,
        'arena_allocations': tape.arena.n_allocations,
    }


def print_graph_summary(tape, detailed: bool = False) -> Dict:
    """
    Print a summary of the tape.

    Args:
        tape: Tape object
        detailed: also list every node (only for tapes of at most 100 nodes)

    Returns:
        the statistics dict from get_graph_stats()
    """
    stats = get_graph_stats(tape)
    if stats['nodes'] == 0:
        print("Empty computation graph")
        return stats

    print("\n" + "="*70)
    print("COMPUTATION GRAPH SUMMARY")
    print("="*70)
    print(f"Total nodes:        {stats['nodes']:,}")
    print(f"Total edges:        {stats['edges']:,}")
    print(f"Max fan-in:         {stats['max_fan_in']}")
    print(f"Avg fan-in:         {stats['avg_fan_in']:.2f}")
    print(f"Max fan-out:        {stats['max_fan_out']}")
    print(f"Avg fan-out:        {stats['avg_fan_out']:.2f}")
    print(f"Leaves:             {stats['leaves']:,}")
    print(f"Arena bytes used:   {stats['arena_bytes']:,} in {stats['arena_allocations']:,} allocations")
    print()
    print("Operation breakdown:")
    for op_type, count in Counter(stats['operations']).most_common(10):
        pct = 100.0 * count / stats['nodes']
        print(f"  {op_type:24s}: {count:6,} ({pct:5.1f}%)")

    if detailed and stats['nodes'] <= 100:
        print()
        print("="*70)
        print("DETAILED NODE LIST")
        print("="*70)
        for node in tape.nodes:
            parent_info = ", ".join(f"Node{p.index}" for p in node.operands())
            print(f"Node {node.index:3d}: {node.op_tag:24s} ({node.val:12.6g}) <- [{parent_info}]")

    print("="*70 + "\n")
    return stats


def analyze_graph_complexity(tape) -> str:
    """
    Analyse the tape and return a short text report.
    """
    stats = get_graph_stats(tape)

    if stats['nodes'] == 0:
        return "Empty computation graph"

    report = []
    report.append("Graph Complexity Analysis:")
    report.append(f"  Total operations: {stats['nodes']:,}")
    report.append(f"  Total connections: {stats['edges']:,}")
    report.append(f"  Average branching: {stats['avg_fan_out']:.2f}")
    report.append(f"  Arena bytes per node: {stats['arena_bytes'] / stats['nodes']:.1f}")

    if stats['nodes'] < 1000:
        complexity = "Low"
    elif stats['nodes'] < 10000:
        complexity = "Medium"
    else:
        complexity = "High"

    report.append(f"  Complexity level: {complexity}")

    # Most common operations
    top_ops = sorted(stats['operations'].items(), key=lambda x: x[1], reverse=True)[:3]
    report.append("  Top operations:")
    for op, count in top_ops:
        pct = 100.0 * count / stats['nodes']
        report.append(f"    - {op}: {pct:.1f}%")

    return "\n".join(report)
