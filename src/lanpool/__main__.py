from lanpool.cli.main import run

run()
