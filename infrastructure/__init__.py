"""
Infrastructure Package
======================

Provides abstraction layers for external dependencies following the Dependency Inversion Principle.

Modules:
    - payments: Payment provider abstraction (mock checkout)
    - events: Domain event bus (Redis pub/sub, in-memory)
    - observability: OpenTelemetry tracing setup
    - container: Service locator wiring infrastructure into domain services
"""
