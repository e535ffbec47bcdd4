import sys
import click
import logging
from pathlib import Path

from .core import ConfigManager, SceneGlueError
from .glue import Backend
from .runner import FeatureRunner, RunnerConfig
from . import __version__


@click.group()
@click.option('--config', '-c', type=click.Path(), help='Configuration file path')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.pass_context
def cli(ctx, config, verbose):
    """scene-glue - run step glue against a Gherkin engine"""
    # Load configuration
    config_path = Path(config) if config else None
    ctx.obj = ConfigManager(config_path)

    # Setup logging
    level = logging.DEBUG if verbose else getattr(
        logging, str(ctx.obj.get('general.log_level', 'INFO')).upper(), logging.INFO
    )
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    # Glue modules are named relative to the project directory
    if str(Path.cwd()) not in sys.path:
        sys.path.insert(0, str(Path.cwd()))


@cli.command()
def version():
    """Show version information"""
    click.echo(f"scene-glue v{__version__}")


@cli.command()
@click.argument('feature_path', type=click.Path(exists=True))
@click.option('--glue', '-g', multiple=True, help='Glue module to load (repeatable)')
@click.option('--tags', '-t', default=None, help='Tag expression selecting scenarios')
@click.pass_obj
def run(config, feature_path, glue, tags):
    """Run feature files against glue modules"""
    runner_config = RunnerConfig.from_config(
        config,
        glue_paths=list(glue),
        tags=tags,
    )
    runner = FeatureRunner(runner_config, Backend.from_config(config))

    try:
        results = runner.execute(feature_path)
    except SceneGlueError as e:
        click.echo(f"❌ {e}", err=True)
        raise SystemExit(1)

    for feature in results['features']:
        click.echo(f"Feature: {feature['feature']}")
        for scenario in feature['scenarios']:
            mark = "✅" if scenario['status'] == 'passed' else "❌"
            click.echo(f"  {mark} {scenario['name']} [{scenario['status']}]")
            for step in scenario['steps']:
                if step['status'] == 'failed':
                    click.echo(f"      {step['keyword']} {step['name']}: {step.get('error')}")
                elif step['status'] == 'undefined':
                    click.echo(f"      {step['keyword']} {step['name']}: undefined")
                    click.echo(step['snippet'])

    summary = results['summary']
    click.echo(f"\n📊 Summary:")
    click.echo(f"  - Scenarios: {summary['total']}")
    click.echo(f"  - Passed: {summary['passed']}")
    click.echo(f"  - Failed: {summary['failed']}")
    click.echo(f"  - Undefined: {summary['undefined']}")

    if results['status'] != 'passed':
        raise SystemExit(1)


@cli.command()
@click.argument('step_text')
@click.option('--keyword', '-k', default='Given', help='Gherkin keyword of the step')
@click.pass_obj
def snippet(config, step_text, keyword):
    """Print a step body skeleton for STEP_TEXT"""
    click.echo(Backend.from_config(config).get_snippet(step_text, keyword))


@cli.command()
@click.option('--glue', '-g', multiple=True, help='Glue module to load (repeatable)')
@click.pass_obj
def steps(config, glue):
    """List registered step definitions"""
    runner = FeatureRunner(RunnerConfig(glue_paths=list(glue)), Backend.from_config(config))

    try:
        definitions = runner.list_all_steps()
    except SceneGlueError as e:
        click.echo(f"❌ {e}", err=True)
        raise SystemExit(1)

    if not definitions:
        click.echo("No step definitions registered")
        return

    for definition in definitions:
        click.echo(f"{definition['pattern']}  # {definition['location']}")


def main():
    """Main entry point"""
    cli()


if __name__ == "__main__":
    main()
