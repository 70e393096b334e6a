import click

from .cli_request import get, post, post_json, upload


@click.group()
@click.version_option(package_name="jinwechat")
def cli() -> None:
    """Command line access to the messaging platform API."""


cli.add_command(get)
cli.add_command(post)
cli.add_command(post_json)
cli.add_command(upload)
