import json
import logging

import click

from stockrisk.config import Settings
from stockrisk.logging_config import setup_logging

logger = logging.getLogger(__name__)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
def cli(verbose: bool):
    """stockrisk - Monte Carlo Stock Risk Analyzer"""
    settings = Settings()
    setup_logging(settings.log_dir)
    if verbose:
        root = logging.getLogger()
        root.setLevel(logging.DEBUG)
        for handler in root.handlers:
            handler.setLevel(logging.DEBUG)


@cli.command()
@click.option("--investment", "-i", type=float, default=None,
              help="Initial investment in USD (default: SR_DEFAULT_INITIAL_INVESTMENT)")
@click.option("--horizon-days", "-d", type=int, default=None,
              help="Trading days to simulate forward")
@click.option("--trials", "-n", type=int, default=None,
              help="Number of Monte Carlo trials")
@click.option("--mean-return", type=float, default=None,
              help="Mean daily return, e.g. 0.0006")
@click.option("--volatility", type=float, default=None,
              help="Daily volatility, e.g. 0.012")
@click.option("--price", type=float, default=None,
              help="Current asset price")
@click.option("--seed", type=int, default=None,
              help="Random seed for a reproducible run")
@click.option("--workers", "-w", type=int, default=None,
              help="Worker processes (default: SR_SIMULATION_MAX_WORKERS)")
@click.option("--json", "as_json", is_flag=True, help="Print results as JSON")
def simulate(
    investment: float | None,
    horizon_days: int | None,
    trials: int | None,
    mean_return: float | None,
    volatility: float | None,
    price: float | None,
    seed: int | None,
    workers: int | None,
    as_json: bool,
):
    """Run a Monte Carlo simulation and print the risk report."""
    from stockrisk.analysis.risk import (
        annualized_return,
        annualized_volatility,
        classify_risk,
        recommend,
    )
    from stockrisk.analysis.sim_models import SimulationConfig
    from stockrisk.analysis.simulation import run_simulation
    from stockrisk.exceptions import InvalidConfigError, NumericDegeneracyError

    settings = Settings()
    defaults = SimulationConfig.from_settings(settings)
    config = SimulationConfig(
        initial_investment=investment if investment is not None else defaults.initial_investment,
        horizon_days=horizon_days if horizon_days is not None else defaults.horizon_days,
        trial_count=trials if trials is not None else defaults.trial_count,
        mean_daily_return=mean_return if mean_return is not None else defaults.mean_daily_return,
        daily_volatility=volatility if volatility is not None else defaults.daily_volatility,
        current_price=price if price is not None else defaults.current_price,
    )

    try:
        summary = run_simulation(
            config,
            seed=seed if seed is not None else settings.simulation_seed,
            max_workers=workers if workers is not None else settings.simulation_max_workers,
            chunk_size=settings.simulation_chunk_size,
        )
    except InvalidConfigError as e:
        raise click.UsageError(str(e))
    except NumericDegeneracyError as e:
        raise click.ClickException(f"Simulation failed: {e}")
    except KeyboardInterrupt:
        click.echo("\nSimulation interrupted.", err=True)
        raise click.Abort()

    risk = classify_risk(summary)
    advice = recommend(summary, config.horizon_days)
    annual_return = annualized_return(config.mean_daily_return)
    annual_vol = annualized_volatility(config.daily_volatility)

    if as_json:
        click.echo(json.dumps({
            "config": {
                "initial_investment": config.initial_investment,
                "horizon_days": config.horizon_days,
                "trial_count": config.trial_count,
                "mean_daily_return": config.mean_daily_return,
                "daily_volatility": config.daily_volatility,
                "current_price": config.current_price,
            },
            "summary": summary.to_dict(),
            "annualized_return": annual_return,
            "annualized_volatility": annual_vol,
            "risk": risk.to_dict(),
            "recommendation": advice.to_dict(),
        }, indent=2))
        return

    rel = summary.relative_to_investment()
    click.echo("\n" + "=" * 60)
    click.echo("  MONTE CARLO RISK ANALYSIS")
    click.echo("=" * 60)
    click.echo(f"  Trials:           {summary.trial_count:,}")
    click.echo(f"  Horizon:          {config.horizon_days} days")
    click.echo(f"  Mean Return:      {config.mean_daily_return:+.4%} daily ({annual_return:+.1%} annualized)")
    click.echo(f"  Volatility:       {config.daily_volatility:.2%} daily ({annual_vol:.1%} annualized)")
    click.echo(f"  Current Price:    ${summary.current_price:>12,.2f}")
    click.echo(f"  Shares:           {summary.share_count:>13,.4f}")
    click.echo("  " + "-" * 56)
    click.echo(f"  Expected Value:   ${summary.mean:>12,.2f}")
    click.echo(f"  Expected Return:  ${summary.expected_return:>12,.2f}  ({rel['expected_return']:+.2%})")
    click.echo(f"  Std Dev:          ${summary.std:>12,.2f}")
    click.echo("  " + "-" * 56)
    for key, value in summary.percentiles.items():
        click.echo(f"  {key.upper():>14}:   ${value:>12,.2f}  ({rel[key]:+.2%})")
    click.echo("  " + "-" * 56)
    click.echo(f"  VaR (95%):        ${summary.var_5pct:>12,.2f}  ({rel['var_5pct']:.2%} of investment)")
    click.echo(f"  Prob of Profit:   {summary.prob_profit * 100:>8.1f}%")
    click.echo(f"  Prob of >=10% Loss: {summary.prob_loss_10 * 100:>6.1f}%")
    click.echo("  " + "-" * 56)
    click.echo(f"  Risk Level:       {risk.level}")
    click.echo(f"                    {risk.message}")
    click.echo(f"  Recommendation:   {advice.action} - {advice.headline}")
    for note in advice.notes:
        click.echo(f"    - {note}")
    click.echo("=" * 60)


@cli.command()
@click.option("--host", default=None, help="Bind address (default: SR_API_HOST)")
@click.option("--port", type=int, default=None, help="Port (default: SR_API_PORT)")
def serve(host: str | None, port: int | None):
    """Start the HTTP API server."""
    import uvicorn

    from stockrisk.web.app import create_app

    settings = Settings()
    host = host if host is not None else settings.api_host
    port = port if port is not None else settings.api_port
    click.echo(f"Starting stockrisk API on {host}:{port}")
    uvicorn.run(create_app(settings), host=host, port=port)


if __name__ == "__main__":
    cli()
