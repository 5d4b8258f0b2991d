"""agridex: card dataset reconciliation and canonicalization pipeline."""
