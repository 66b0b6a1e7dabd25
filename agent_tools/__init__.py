"""
Agent Tools - Function Calling for Conversational Agents

This package lets an agent call registered tools mid-conversation,
feed the results back to the generative model and keep going until
the model produces a final answer or the iteration cap is reached.

Packages:
- core: Settings and exception hierarchy
- observability: Structured logging
- models: Domain models (tools, declarations, transcripts)
- tools: Tool interface, schema translator, registry, executor, built-ins
- providers: Generative model port and adapters (Gemini, fake)
- clients: HTTP clients for external collaborators
- services: Function-calling orchestrator
"""

__version__ = "1.0.0"
