"""AI Generation Gateway.

Request-safety and provider-orchestration layer between a user's prompt
and the upstream LLM providers:
  - Prompt Firewall (inbound classification, outbound markup scan)
  - Per-caller fixed window Rate Limiter
  - Key Rotator (round-robin credential pools)
  - Response Cache (TTL-bounded dedup of identical requests)
  - Provider Adapters (protocol differences, bounded by timeout)
  - AI Manager (role routing + architect -> engineer failover)
"""
