#
# Copyright OpenSearch Contributors
# SPDX-License-Identifier: Apache-2.0
#
# The OpenSearch Contributors require contributions made to
# this file be licensed under the Apache-2.0 license or a
# compatible open source license.
#

import logging
import sys

import click

import schema_migration.migrate as migrate_
from schema_migration.environment import Environment
from schema_migration.logging_wrangler import LoggingWrangler
from schema_migration.schema_diff import diff_all_schemas, format_schema_diff, generate_schema_diff

logger = logging.getLogger(__name__)


class Context(object):
    def __init__(self, config_file: str, dry_run: bool) -> None:
        self.config_file = config_file
        self.env = Environment(config_file=config_file, dry_run=dry_run)


@click.group()
@click.option("--config-file", default="schema_migration.yaml", help="Path to config file")
@click.option("--dry-run", is_flag=True, default=False,
              help="Log the requests that would change the cluster instead of sending them.")
@click.option("--log-file", default=None, help="Also write DEBUG level logs to this file.")
@click.option('-v', '--verbose', count=True, help="Verbosity level. Default is warn, -v is info, -vv is debug.")
@click.pass_context
def cli(ctx, config_file: str, dry_run: bool, log_file: str, verbose: int):
    LoggingWrangler(verbose, log_file)
    logger.info(f"Logging set to {logging.getLevelName(logging.getLogger().getEffectiveLevel())}")
    ctx.obj = Context(config_file, dry_run)


@cli.command(name="migrate", help="Migrate one alias to its local schema, or every alias with a schema folder.")
@click.argument("alias_name", required=False)
@click.pass_obj
def migrate_cmd(ctx, alias_name):
    env = ctx.env
    if alias_name:
        outcome = migrate_.migrate_one_schema(alias_name, env.client, env.schema_store, env.options)
        click.echo(f"Migration of '{alias_name}' succeeded ({outcome.value})")
    else:
        migrated = migrate_.migrate_all(env.client, env.schema_store, env.options)
        click.echo(f"Migrated {len(migrated)} schema(s): {', '.join(migrated)}")


@cli.command(name="diff", help="Show how the live index behind an alias differs from its local schema.")
@click.argument("alias_name", required=False)
@click.pass_obj
def diff_cmd(ctx, alias_name):
    env = ctx.env
    if alias_name:
        results = [generate_schema_diff(alias_name, env.client, env.schema_store)]
    else:
        results = diff_all_schemas(env.client, env.schema_store)
    click.echo("\n\n".join(format_schema_diff(result) for result in results))


@cli.command(name="close", help="Close an index.")
@click.argument("index_name")
@click.pass_obj
def close_cmd(ctx, index_name):
    if migrate_.close_index(index_name, ctx.env.client):
        click.echo(f"Closed index {index_name}")
    else:
        click.echo(f"Index {index_name} does not exist")


@cli.command(name="delete", help="Delete a closed index.")
@click.argument("index_name")
@click.pass_obj
def delete_cmd(ctx, index_name):
    if migrate_.delete_index(index_name, ctx.env.client):
        click.echo(f"Deleted index {index_name}")
    else:
        click.echo(f"Index {index_name} does not exist")


# Create a wrapper to handle exceptions for the CLI
def main():
    try:
        cli(standalone_mode=False)
    except click.exceptions.Abort:
        click.echo("Aborted!", err=True)
        sys.exit(1)
    except click.ClickException as e:
        e.show()
        sys.exit(e.exit_code)
    except Exception as e:
        # Verbose mode sets logging level to INFO (20) or DEBUG (10), default is WARN (30)
        root_logger = logging.getLogger()
        if root_logger.getEffectiveLevel() <= logging.INFO:
            import traceback
            click.echo("Error occurred with verbose mode enabled, showing full traceback:", err=True)
            click.echo(traceback.format_exc(), err=True)
        else:
            click.echo(f"Error: {str(e)}", err=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
