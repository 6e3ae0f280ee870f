"""
Send a handful of concurrent requests to a UDP echo server and print the replies.

Start any UDP echo server on the configured port first, e.g.
    socat -v UDP-LISTEN:9999,fork EXEC:cat
"""
import asyncio
import json
import logging

from udpcorrelate import CorrelatingDatagramClient, UdpError, load_config, run_with_keyboard_interrupt

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

async def main():
    config = load_config("examples/config.yaml")[0]

    async with CorrelatingDatagramClient.from_config(config, logger=logger) as client:

        async def request(request_id: int):
            payload = json.dumps({"id": request_id}).encode()
            try:
                reply = await client.send(payload, json.loads, lambda msg: msg.get("id") == request_id)
                logger.info(f"Request {request_id} answered: {reply}")
            except UdpError as e:
                logger.error(f"Request {request_id} failed: {e}")

        await asyncio.gather(*(request(i) for i in range(1, 6)))

if __name__ == "__main__":
    run_with_keyboard_interrupt(main)
