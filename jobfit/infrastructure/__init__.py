"""Infrastructure Layer: Contains concrete implementations and adapters.

Connects the application to the outside world (LLM APIs, the console,
configuration files) by implementing the interfaces defined in the domain
layer. Also includes resilience, caching and monitoring services.
"""
