"""
Theurgy - Command implementations for Solace.

Each module backs one or more top-level CLI commands:
- derive:   Derive a program address from seeds
- divine:   Query balances and signature status; request airdrops
- transfer: Build, sign, send and confirm a lamport transfer
"""
