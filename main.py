from gitlab_ci_setup.cli import run


if __name__ == "__main__":
    raise SystemExit(run())
