import click
from httpgrace.modules.server.commands import create_serve_commands
from httpgrace.modules.logging import create_logger


class HttpgraceContext:
    """Context object to store CLI state."""
    def __init__(self):
        self.logger = None

pass_context = click.make_pass_decorator(HttpgraceContext, ensure=True)

@click.group()
@click.option('--output', '-o',
              type=click.Choice(['colorful', 'plain', 'json']),
              default='colorful',
              help='Output format (colorful for CLI, plain for CI/file, json for machine parsing)',
              envvar='HTTPGRACE_OUTPUT')
@click.option('--log-level', '-l',
              type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']),
              default='INFO',
              help='Set the logging level',
              envvar='HTTPGRACE_LOG_LEVEL')
@pass_context
def cli(ctx, output, log_level):
    """httpgrace: serve HTTP with graceful shutdown."""
    ctx.logger = create_logger(output, log_level)

# Add commands
cli.add_command(create_serve_commands())

def main():
    cli()

if __name__ == '__main__':
    main()
