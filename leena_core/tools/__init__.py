"""Tool declarations and execution."""
