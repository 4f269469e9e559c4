"""ddpack clean - tag cleanup for Dungeondraft asset packs."""
