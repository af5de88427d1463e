"""
Exam room domain logic.

Includes:
- registry: Live channel endpoints and their room bindings.
- room_store / memory_store: Room and participant persistence.
- incident_logger: Proctoring incidents and host notifications.
- coordinator: Room lifecycle state machine and event routing.
"""
