"""Use cases: booking, settlement, rewards and read-side queries."""
