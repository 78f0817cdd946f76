"""Cart aggregation: week keys, matching, reconciliation and derived views."""
