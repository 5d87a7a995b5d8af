"""
Entry point for the arbitrage desk.

Usage:
    python -m arbdesk
    arbdesk  # if installed via pip
"""

import asyncio
import sys


# Try to use uvloop for better performance
try:
    import uvloop

    uvloop.install()
    UVLOOP_ENABLED = True
except ImportError:
    UVLOOP_ENABLED = False


def main() -> int:
    """
    Main entry point.

    Returns:
        Exit code (0 for success).
    """
    from arbdesk import __version__
    from arbdesk.config.settings import get_settings
    from arbdesk.core.engine import TradingEngine
    from arbdesk.core.errors import EngineError

    print(
        f"""
╔═══════════════════════════════════════════════════════════════╗
║     CROSS-EXCHANGE ARBITRAGE DESK v{__version__:<21}      ║
║                                                               ║
║     Spread scanner and commission credit settlement           ║
╚═══════════════════════════════════════════════════════════════╝
    """
    )

    try:
        settings = get_settings()
    except Exception as e:
        print(f"Configuration error: {e}")
        print("\nSettings are read from the environment or a .env file, e.g.:")
        print("  MIN_PROFIT_PERCENT=0.5")
        print('  EXCHANGES=["BINANCE","OKX"]')
        return 1

    print("Configuration:")
    print(f"  Mode:           {'DRY RUN' if settings.dry_run else 'LIVE'}")
    print(f"  Feed:           {'Public REST' if settings.use_rest_feed else 'Simulated'}")
    print(f"  Exchanges:      {', '.join(settings.exchanges)}")
    print(f"  Symbols:        {len(settings.symbols)}")
    print(f"  Min profit:     {settings.min_profit_percent}%")
    print(f"  Commission:     {settings.default_commission_rate * 100}% default")
    print(f"  Credit value:   {settings.credit_unit_value}")
    print(f"  Opportunity TTL:{settings.opportunity_ttl_seconds:>6.0f}s")
    print(f"  Scan interval:  {settings.scan_interval_seconds:.0f}s")
    print(f"  uvloop:         {'Enabled' if UVLOOP_ENABLED else 'Disabled'}")
    print()

    async def run_engine() -> int:
        try:
            engine = TradingEngine(settings)
        except EngineError as e:
            print(f"Configuration error: {e}")
            return 1

        try:
            await engine.setup()
            await engine.run()
            return 0

        except KeyboardInterrupt:
            print("\nInterrupted by user")
            return 0

        except Exception as e:
            print(f"\nFatal error: {e}")
            import traceback

            traceback.print_exc()
            return 1

        finally:
            await engine.shutdown()

    return asyncio.run(run_engine())


if __name__ == "__main__":
    sys.exit(main())
