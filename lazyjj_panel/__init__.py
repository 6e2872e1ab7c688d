"""lazyjj-panel - run lazyjj in a floating terminal panel."""

__version__ = "0.1.0"
