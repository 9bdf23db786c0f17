"""Jinja2 templates for the files roundsman generates on the remote host."""

import json
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, StrictUndefined

base_path = Path(__file__).parent / "templates"
jinja_env = Environment(
    loader=FileSystemLoader(base_path),
    undefined=StrictUndefined,
    keep_trailing_newline=True,
)
# JSON string literals are valid double-quoted Ruby strings.
jinja_env.filters["ruby_string"] = json.dumps


def get_template(template_name: str):
    """Load a Jinja2 template from the templates directory.

    Args:
        template_name: Name of the template file (without .j2 extension)

    Returns:
        Jinja2 Template object
    """
    return jinja_env.get_template(f"{template_name}.j2")


def render_solo_rb(cookbook_paths: list[str]) -> str:
    return get_template("solo.rb").render(cookbook_paths=cookbook_paths)


def render_ruby_install_script(
    chef_directory: str,
    ruby_version: str,
    ruby_install_dir: str,
    ruby_build_repository: str,
) -> str:
    return get_template("install_ruby.sh").render(
        chef_directory=chef_directory,
        ruby_version=ruby_version,
        ruby_install_dir=ruby_install_dir,
        ruby_build_repository=ruby_build_repository,
    )
