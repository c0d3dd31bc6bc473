import nox

PYTHON_VERSIONS = ["3.11", "3.12", "3.13"]

# Packages with C extensions that must be rebuilt per Python version.
# Poetry's wheel cache can serve a .so compiled for the wrong interpreter.
_C_EXT_PACKAGES = ["psycopg2-binary"]


def _install(session: nox.Session) -> None:
    """Install the project with the test group into the nox virtualenv."""
    session.run("poetry", "install", "--with", "test", "--all-extras", external=True)
    session.run("pip", "install", "--force-reinstall", "--no-cache-dir", *_C_EXT_PACKAGES)


@nox.session(python=PYTHON_VERSIONS)
def tests(session: nox.Session) -> None:
    """Run the full test suite across Python versions."""
    _install(session)
    session.run("pytest", *session.posargs)


@nox.session(python=PYTHON_VERSIONS)
def tests_domain(session: nox.Session) -> None:
    """Aggregates, gateway adapters and templates (no infrastructure required)."""
    _install(session)
    session.run("pytest", "tests/storefront/domain/", *session.posargs)


@nox.session(python=PYTHON_VERSIONS)
def tests_application(session: nox.Session) -> None:
    """Commands, inventory guard and checkout orchestration."""
    _install(session)
    session.run("pytest", "tests/storefront/application/", *session.posargs)


@nox.session(python=PYTHON_VERSIONS)
def tests_integration(session: nox.Session) -> None:
    """HTTP endpoints through the FastAPI test client."""
    _install(session)
    session.run("pytest", "tests/storefront/integration/", *session.posargs)


@nox.session(python="3.12")
def bdd(session: nox.Session) -> None:
    """Checkout journeys written as Gherkin scenarios."""
    _install(session)
    session.run("pytest", "tests/storefront/bdd/", *session.posargs)


@nox.session(python="3.12")
def tests_postgres(session: nox.Session) -> None:
    """Full suite against PostgreSQL (requires DATABASE_URL)."""
    _install(session)
    session.run("pytest", "--env", "production", *session.posargs)
