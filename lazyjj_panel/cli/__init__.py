"""CLI module for lazyjj-panel."""
