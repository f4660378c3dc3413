from .market_stats import MarketStatisticsProvider
