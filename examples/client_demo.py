"""Small demo that calls the agent server endpoints with plain httpx.
Run while the server is running locally at http://127.0.0.1:3000

  python examples/client_demo.py --token <agent access token>
"""
import argparse
import asyncio
import httpx


def parse_args():
    p = argparse.ArgumentParser()
    p.add_argument("--base-url", default="http://127.0.0.1:3000")
    p.add_argument("--token", required=True, help="access token from get_agent_access_token")
    p.add_argument("--credits", type=int, default=1)
    return p.parse_args()


async def do_demo(args):
    auth = {"Authorization": f"Bearer {args.token}"}

    async with httpx.AsyncClient(base_url=args.base_url, timeout=60.0) as client:
        r = await client.get("/health")
        print("health =>", r.status_code, r.json())

        # No bearer token: rejected before any credits are touched
        r = await client.post("/image", json={"prompt": "A lighthouse", "credit_amount": args.credits})
        print("image(no auth) =>", r.status_code, r.json())

        # Missing credit_amount
        r = await client.post("/image", json={"prompt": "A lighthouse"}, headers=auth)
        print("image(no credits) =>", r.status_code, r.json())

        for endpoint in ("/gpt", "/song", "/image", "/video", "/combined"):
            r = await client.post(endpoint, json={"prompt": "A lighthouse at dawn", "credit_amount": args.credits}, headers=auth)
            print(f"{endpoint.lstrip('/')} =>", r.status_code, r.json())


if __name__ == "__main__":
    asyncio.run(do_demo(parse_args()))
