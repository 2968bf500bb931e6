"""Intermediate representation: AST, GraphIR and SequenceIR."""

from console_mermaid.ir.ast import Edge, Event, Graph, Node, Participant, SequenceDiagram, Subgraph
from console_mermaid.ir.graph import ClusterData, EdgeData, GraphIR, NodeData
from console_mermaid.ir.sequence import EventData, ParticipantData, SequenceIR

__all__ = [
    "ClusterData",
    "Edge",
    "EdgeData",
    "Event",
    "EventData",
    "Graph",
    "GraphIR",
    "Node",
    "NodeData",
    "Participant",
    "ParticipantData",
    "SequenceDiagram",
    "SequenceIR",
    "Subgraph",
]
