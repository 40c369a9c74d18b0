"""HR assistant backend: guardrails, tool calling and conversation memory."""
