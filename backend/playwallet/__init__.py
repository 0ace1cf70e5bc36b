"""PlayWallet: wallet, wager settlement and commission ledger API."""
