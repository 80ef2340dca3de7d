from blnk_statements.cli import run

run()
