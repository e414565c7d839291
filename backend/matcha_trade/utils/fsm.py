"""Finite state machine helper for order status lifecycles.

Usage:
    from matcha_trade.utils.fsm import TransitionValidator
    CLIENT_ORDER_FSM = TransitionValidator({
        'pending': {'confirmed', 'cancelled'},
        'confirmed': {'delivered', 'cancelled'},
        'delivered': set(),
        'cancelled': set(),
    })
    CLIENT_ORDER_FSM.assert_can_transition(order.status, target)

Aborts with 400 if the move is not allowed. A no-op transition (same status) is accepted.
"""
from __future__ import annotations
from typing import Dict, Set
from flask import abort

class TransitionValidator:
    def __init__(self, graph: Dict[str, Set[str]], field_name: str = 'status'):
        self.graph = graph
        self.field_name = field_name

    def is_terminal(self, status: str) -> bool:
        return not self.graph.get(status)

    def assert_can_transition(self, current: str, target: str):
        if current == target:
            return True
        allowed = self.graph.get(current, set())
        if target not in allowed:
            abort(400, description=f"Invalid {self.field_name} transition {current} -> {target}")
        return True

__all__ = ['TransitionValidator']
