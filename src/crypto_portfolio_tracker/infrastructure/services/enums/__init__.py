from crypto_portfolio_tracker.infrastructure.services.enums.cycle_outcome_enum import CycleOutcomeEnum
from crypto_portfolio_tracker.infrastructure.services.enums.export_format_enum import ExportFormatEnum
from crypto_portfolio_tracker.infrastructure.services.enums.polling_state_enum import PollingStateEnum
from crypto_portfolio_tracker.infrastructure.services.enums.trigger_source_enum import TriggerSourceEnum

__all__ = ["CycleOutcomeEnum", "ExportFormatEnum", "PollingStateEnum", "TriggerSourceEnum"]
