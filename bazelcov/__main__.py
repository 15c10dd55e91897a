from bazelcov.cli import main

main(prog_name="bazelcov")
