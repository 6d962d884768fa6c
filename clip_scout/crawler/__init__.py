"""clip_scout.crawler: dispatcher, link discovery and rendered-page extraction."""
