"""Scenarios for generating realistic EMI portfolios."""

from emi_engine.scenarios.emi_portfolio import EmiPortfolioScenario

__all__ = ["EmiPortfolioScenario"]
