from tests.helpers.object_mothers.coin_balance_object_mother import CoinBalanceObjectMother
from tests.helpers.object_mothers.portfolio_snapshot_object_mother import PortfolioSnapshotObjectMother

__all__ = ["CoinBalanceObjectMother", "PortfolioSnapshotObjectMother"]
