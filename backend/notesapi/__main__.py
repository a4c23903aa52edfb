from notesapi.cli import run

run()
