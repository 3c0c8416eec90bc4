from typing import Optional
import click

from httpgrace.modules.server.command.serve import ServeCommand

def create_serve_commands() -> click.Command:
    """Create the serve command."""

    @click.command(name="serve")
    @click.argument("directory", type=click.Path(exists=True, file_okay=False), default=".")
    @click.option("--addr", "-a", default="127.0.0.1:8080", help="Address to listen on (host:port)", envvar="HTTPGRACE_ADDR")
    @click.option("--timeout", "-t", type=float, default=10.0, help="Graceful shutdown timeout in seconds", envvar="HTTPGRACE_TIMEOUT")
    @click.option("--cert", type=click.Path(dir_okay=False), help="TLS certificate file")
    @click.option("--key", type=click.Path(dir_okay=False), help="TLS private key file")
    @click.option("--idle-timeout", type=float, help="Close idle keep-alive connections after this many seconds")
    @click.option("--request-timeout", type=float, help="Answer 503 when a request takes longer than this many seconds")
    @click.pass_context
    def serve(
        ctx,
        directory: str,
        addr: str,
        timeout: float,
        cert: Optional[str],
        key: Optional[str],
        idle_timeout: Optional[float],
        request_timeout: Optional[float]
    ):
        """Serve DIRECTORY over HTTP(S) until SIGINT/SIGTERM, then drain in-flight requests."""
        command = ServeCommand(
            logger=ctx.obj.logger,
            timeout=timeout,
            idle_timeout=idle_timeout,
            request_timeout=request_timeout
        )

        exit_code = command.run(
            directory=directory,
            addr=addr,
            cert_file=cert,
            key_file=key
        )
        ctx.exit(exit_code)

    return serve
