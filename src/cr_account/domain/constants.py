# Payer of system-originated orders (envelope refunds). No account row exists for it.
SYSTEM_USER_ID: str = "0"
