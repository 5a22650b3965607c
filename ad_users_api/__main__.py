import uvicorn

from .env_settings import get_env


def main() -> None:
    env = get_env()
    uvicorn.run("ad_users_api.main:app", host=env.host, port=env.port, log_config=None)


if __name__ == "__main__":
    main()
