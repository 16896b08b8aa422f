from .cli import app

app(prog_name="delivery-hooks")
