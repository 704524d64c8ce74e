"""Grant lifecycle, scope catalog and authorization for shared pets."""
