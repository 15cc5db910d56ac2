import argparse
import asyncio
import json

from dotenv import load_dotenv

from corsrelay import ClientConfig, RelayClient


async def main(show_id):
    async with RelayClient(ClientConfig.from_env()) as client:
        if show_id is None:
            data = await client.fetch_popular_movies()
            for i, movie in enumerate(data.get("results", [])[:5]):
                print(f"{i+1}. {movie.get('title')} ({movie.get('release_date', 'n/a')})")
        else:
            data = await client.fetch_tv_show_details(show_id)
            print(json.dumps(data, indent=4))


if __name__ == "__main__":
    load_dotenv()
    parser = argparse.ArgumentParser(description='Fetch popular movies, or one TV show, '
                                     'through the relay configured in RELAY_PROXY_URL.')
    parser.add_argument('--tv', dest='show_id', type=int, default=None,
                        help='Show details for this TV show id instead.')
    args = parser.parse_args()

    asyncio.run(main(args.show_id))
