"""Organization-scoped wage ledger for tea estates."""
