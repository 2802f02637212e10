import os, sys, tempfile, json
from fastapi.testclient import TestClient
from fxconvert.main import create_app
from fxconvert.core.config import Settings

"""Smoke run of the converter against the static and the live external-http provider.

Converts 10 USD to EUR under each provider, then restarts the external-http app
on the same database to show the last result being restored. A network failure
under external-http shows up as a startup notice and a 502 on /convert.
"""


def run():
    out = {}
    with tempfile.TemporaryDirectory() as d:
        for provider in ("static", "external-http"):
            settings = Settings(
                db_path=os.path.join(d, f"{provider}.db"), exchange_rate_provider=provider
            )
            with TestClient(create_app(settings_override=settings)) as client:
                resp = client.post(
                    "/convert", json={"amount": "10", "from": "USD", "to": "EUR"}
                )
                out[provider] = {"status": resp.status_code, "body": resp.json()}

        settings = Settings(
            db_path=os.path.join(d, "external-http.db"),
            exchange_rate_provider="external-http",
        )
        with TestClient(create_app(settings_override=settings)) as client:
            out["restored_state"] = client.get("/state").json()["result"]

    print(json.dumps(out, indent=2))


if __name__ == "__main__":
    sys.path.append(os.getcwd())
    run()
