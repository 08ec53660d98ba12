"""
Slot generator: day types, price tiers and ticket mode per (date, time) slot, then the
Seat Unit / Bundle reconcilers driven by the batch orchestrator.

- Seat Unit: one product per date, one tracked variant per slot time, inventory = capacity.
- Bundle: one product per slot, variants per ticket type linked to the seat variant with their seat weight.
"""
