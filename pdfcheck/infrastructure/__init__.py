"""Infrastructure Layer (Adapters):

Contains concrete implementations of the domain interfaces (Ports):
the analyzer subprocess backend, the local event bus, history and
embedded-result storage, the console display, configuration and logging.
"""
