"""
Pneuma - Network interaction layer for Solace.

Provides JSON-RPC request encoding, method-aware response decoding, an
async httpx client, the confirmation tracker and transaction submission.

Uses httpx directly instead of a full Solana SDK.
"""
