from invoke import task


@task
def lint(c):
    c.run("ruff check .")


@task
def format_check(c):
    c.run("ruff format --check .")


@task
def test(c):
    c.run("pytest")


@task
def replay_example(c, system="standard"):
    c.run(f"badminton-elo replay configs/season.yaml --system {system} --side-size 2")


@task
def ci(c):
    lint(c)
    format_check(c)
    test(c)
