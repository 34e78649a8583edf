"""
Traffic Simulation Script

Fires concurrent orders and feedback at running services and reports
how they held up. Start the services first (python scripts/start_dev.py).

Run from project root: python scripts/simulate.py --orders 50
"""

import asyncio
import sys
import os
import random
import time
import argparse
from datetime import datetime
from typing import Any

import httpx
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from restaurant_services.client import RestaurantClient, ServiceRequestError

TOTAL_ORDERS = 50

USER_IDS = ["user123", "user456", "user789", "user321", "user654"]
MENU_ITEMS = [
    {"id": 1, "name": "X-Burger Clássico", "price": 18.90},
    {"id": 2, "name": "X-Burger Bacon", "price": 22.90},
    {"id": 3, "name": "X-Burger Vegetariano", "price": 20.90},
    {"id": 4, "name": "Batata Frita", "price": 12.90},
    {"id": 5, "name": "Onion Rings", "price": 14.90},
    {"id": 6, "name": "Milk Shake", "price": 15.90},
    {"id": 7, "name": "Refrigerante", "price": 6.90},
]
COMMENTS = [
    None,
    "Excelente atendimento!",
    "Muito bom, só demorou um pouco para entregar.",
    "Batata chegou fria.",
    "Perfeito! Recomendo a todos.",
]


def generate_random_items() -> list[dict]:
    """Pick 1-4 menu items with random quantities."""
    items = []
    for _ in range(random.randint(1, 4)):
        item = random.choice(MENU_ITEMS).copy()
        item["quantity"] = random.randint(1, 3)
        items.append(item)
    return items


async def place_order(client: RestaurantClient, order_num: int) -> dict[str, Any]:
    """Create one order, then leave feedback on it."""
    user_id = random.choice(USER_IDS)
    items = generate_random_items()
    total = round(sum(i["price"] * i["quantity"] for i in items), 2)
    start_time = time.time()

    try:
        created = await client.orders.create(user_id=user_id, items=items, total=total)
        order_id = created["order"]["id"]
        await client.feedback.create(
            user_id=user_id,
            rating=random.randint(1, 5),
            comment=random.choice(COMMENTS),
            order_id=order_id,
        )
        return {
            "order_num": order_num,
            "success": True,
            "order_id": order_id,
            "total": total,
            "time": round(time.time() - start_time, 3),
        }
    except (ServiceRequestError, httpx.HTTPError) as e:
        return {
            "order_num": order_num,
            "success": False,
            "error": str(e)[:100],
            "time": round(time.time() - start_time, 3),
        }


async def check_services(client: RestaurantClient) -> bool:
    """Print each service's health; False if any is down."""
    print("\n🩺 Health Check...")
    report = await client.health()
    healthy = True
    for name, status in report.items():
        dependency = status.get("database") or status.get("firebase") or status.get("error")
        ok = status.get("status") == "OK" and dependency == "Connected"
        healthy = healthy and ok
        print(f"   {'✅' if ok else '❌'} {name}: {dependency}")
    return healthy


async def run_simulation(num_orders: int = TOTAL_ORDERS) -> dict[str, Any]:
    """Fire num_orders order+feedback flows concurrently."""
    print("=" * 70)
    print("🔥 TRAFFIC SIMULATION")
    print("=" * 70)
    print(f"📋 Total Orders: {num_orders}")
    print(f"⏰ Started: {datetime.now().strftime('%H:%M:%S')}")
    print("=" * 70)

    async with RestaurantClient(timeout=30.0) as client:
        if not await check_services(client):
            print("\n❌ Some services are down. Start them with scripts/start_dev.py")
            return {"total": num_orders, "successful": 0, "failed": num_orders}

        start_time = time.time()
        results = await asyncio.gather(
            *(place_order(client, i + 1) for i in range(num_orders))
        )
        total_time = round(time.time() - start_time, 2)

        stats = (await client.feedback.stats())["stats"]

    successful = [r for r in results if r["success"]]
    failed = [r for r in results if not r["success"]]

    print("\n" + "=" * 70)
    print("📊 SIMULATION RESULTS")
    print("=" * 70)
    print(f"\n✅ Successful: {len(successful)}/{num_orders}")
    print(f"❌ Failed: {len(failed)}/{num_orders}")
    print(f"⏱️  Total Time: {total_time}s")

    if successful:
        avg_time = round(sum(r["time"] for r in successful) / len(successful), 3)
        revenue = sum(r["total"] for r in successful)
        print(f"\n📈 Average Response: {avg_time}s")
        print(f"   💰 Total Revenue: R$ {revenue:.2f}")

    print(f"\n⭐ Feedback: {stats['total']} total, average {stats['averageRating']}")

    if failed:
        print(f"\n⚠️  Failed Details (showing first 5):")
        for f in failed[:5]:
            print(f"   Order #{f['order_num']}: {f.get('error', 'Unknown error')}")

    print("=" * 70)

    return {
        "total": num_orders,
        "successful": len(successful),
        "failed": len(failed),
        "total_time": total_time,
    }


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Traffic Simulation Script")
    parser.add_argument("--orders", type=int, default=TOTAL_ORDERS, help="Number of orders")
    args = parser.parse_args()

    summary = asyncio.run(run_simulation(args.orders))
    sys.exit(0 if summary["failed"] == 0 else 1)
