"""
Deal analysis: return metrics, scenarios and risk for a leveraged property deal.
"""

__version__ = "0.1.0"
