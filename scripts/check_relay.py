import requests
import os
import argparse
from urllib.parse import quote

proxy_base_url = os.getenv('RELAY_PROXY_URL', 'http://localhost:8000')


def check_relay(target, method):
    url = f'{proxy_base_url}/?url={quote(target, safe="")}'
    print(f"Requesting {method} {url}")

    response = requests.request(method, url, headers={'Origin': 'https://example.com'})

    print(f"Status: {response.status_code} {response.reason}")
    print(f"Access-Control-Allow-Origin: "
          f"{response.headers.get('Access-Control-Allow-Origin', '<missing>')}")
    if 'X-Relay-Error' in response.headers:
        print("Error raised by the relay itself.")
    print()
    print(response.text[:2000])


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description='Send a request through a running relay '
                                     'and show what comes back.')
    parser.add_argument('target', type=str, help='Absolute URL the relay should fetch.')
    parser.add_argument('--method', type=str, default='GET', help='HTTP method to use.')
    args = parser.parse_args()

    check_relay(args.target, args.method.upper())
