"""Table generation: mount reconciliation, residual devices and output."""
