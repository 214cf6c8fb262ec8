"""
Vending system - finite-state controller for coin-operated dispensing devices.

Layers:
- core: exceptions, interfaces, states, events, outcomes
- domain: transition table, controller, machine registry
- infrastructure: settings, asyncio scheduler, diagnostics sinks
- application: vending service and command routing
"""

__version__ = "0.1.0"
