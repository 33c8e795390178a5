"""Policy subpackage - rate freshness gate and role visibility."""
