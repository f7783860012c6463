"""
Programs - Instruction producers.

Each producer takes a mapping of documented options, validates it into a
typed params dataclass, and returns an ``Instruction``:
- system: transfer, create_account, assign, create_account_with_seed
- compute_budget: set_compute_unit_limit, set_compute_unit_price
- associated_token: find_address, create_account(_idempotent)
- sysvar: well-known addresses
"""
