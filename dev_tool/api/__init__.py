"""HTTP surface for dev-tool."""
