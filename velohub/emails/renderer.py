from pathlib import Path

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape

from velohub.db.models import InviteRequest

TEMPLATES_DIR = Path(__file__).parent / "templates"

env = Environment(
    loader=FileSystemLoader(TEMPLATES_DIR),
    autoescape=select_autoescape(["html"]),
    undefined=StrictUndefined,
)


def render_invite_email(request: InviteRequest) -> str:
    return env.get_template("invite.html").render(
        name=request.name,
        owner_name=request.owner_name,
        store_name=request.store_name,
        link=request.link,
    )


def invite_subject(request: InviteRequest) -> str:
    return f"{request.owner_name} convidou você para a {request.store_name} no Velohub"
