from intentgate.cli import app

app(prog_name="intent")
