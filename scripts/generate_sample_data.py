#!/usr/bin/env python3
"""Generate a sample EMI portfolio for manual validation.

Writes ``invoices.json`` and ``notifications.json`` to the local/ folder
(or ``OUTPUT_DIR``), then prints a portfolio summary.
"""

import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from emi_engine.config import EngineConfig, ScenarioConfig
from emi_engine.logging import get_logger, setup_logging
from emi_engine.scenarios import EmiPortfolioScenario
from emi_engine.sinks import JsonFileSink

logger = get_logger(__name__)


def main() -> None:
    """Generate the sample portfolio and its notifications."""
    config = EngineConfig.from_env()
    setup_logging(config.log_level, config.log_format)

    if config.seed is None:
        config.seed = 42
    if config.scenario is None:
        config.scenario = ScenarioConfig(name="sample", num_invoices=20)
    output_dir = config.output.json_output_dir
    if output_dir == Path("output"):
        output_dir = project_root / "local"

    scenario = EmiPortfolioScenario(config)
    scenario.generate()
    result = scenario.derive_notifications()
    if result.failure is not None:
        logger.warning("%s", result.failure)

    sink = JsonFileSink(output_dir, pretty=True)
    scenario.export([sink])
    sink.close()

    for name, value in scenario.get_portfolio_summary().items():
        logger.info("%-32s %s", name + ":", value)


if __name__ == "__main__":
    main()
