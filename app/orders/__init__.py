"""
Orders app: order records, their status history and the state machine that
is the only writer of ``Order.status``.

Modules:
    states: OrderStatus / EscrowStatus enums and the legal transition table
    models: Order (django-fsm protected status) and OrderStatusHistory
    state_machine: OrderStateMachine.transition
    store: OrderStore repository used by the payment engine
    services: buyer/seller workflow (upload, deliver, complete, cancel)
"""
