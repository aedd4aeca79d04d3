"""
Succession ledger modules.

Each sub-package owns one ledger entity and its declarative workflow:

* ``gifts``    -- inter-vivos gifts and their hotchpot treatment
* ``debts``    -- estate liabilities and their statutory payment state
* ``bequests`` -- bequest assignments, conditions and disinheritance records
* ``tax``      -- the tax compliance gate
* ``assets``   -- estate asset holdings and asset detail variants
* ``estate``   -- the estate orchestrator, domain rules and administration service
"""
