#!/usr/bin/env python3
"""
Script de prueba contra una instancia en ejecución del Message Producer
"""
import asyncio
import sys
import time

import aiohttp


BASE_URL = "http://localhost:8000"


async def smoke_message_producer(base_url: str = BASE_URL) -> bool:
    """Probar el Message Producer"""
    print("🧪 Iniciando pruebas del Message Producer...")
    ok = True

    async with aiohttp.ClientSession() as session:

        # 1. Health Check
        print("\n1️⃣ Testing Health Check...")
        async with session.get(f"{base_url}/health") as resp:
            data = await resp.json()
            print(f"   {'✅' if resp.status == 200 else '❌'} Health Status: {data.get('status')}")
            print(f"   📊 Pulsar: {data.get('checks', {}).get('pulsar')}")

        # 2. Mensaje con identificador
        print("\n2️⃣ Testing Message Publish...")
        message = {
            "title": "Test",
            "body": "Test Body Content",
            "sender": "sender123",
            "receiver": "receiver456",
            "messageId": 1001,
            "isImportant": False
        }
        start_time = time.time()
        async with session.post(f"{base_url}/api/messages", json=message) as resp:
            elapsed = (time.time() - start_time) * 1000
            data = await resp.json()
            if resp.status == 202 and data.get("messageId") == "1001":
                print(f"   ✅ Message accepted: {data['messageId']} in {elapsed:.2f}ms")
            else:
                ok = False
                print(f"   ❌ Publish failed: {resp.status} {data}")

        # 3. Mensaje sin identificador
        print("\n3️⃣ Testing Message Without Id...")
        async with session.post(f"{base_url}/api/messages", json={"title": "No id", "body": "..."}) as resp:
            data = await resp.json()
            if resp.status == 202 and data.get("messageId") == "N/A":
                print("   ✅ Message accepted with key 'unknown'")
            else:
                ok = False
                print(f"   ❌ Publish failed: {resp.status} {data}")

        # 4. JSON inválido
        print("\n4️⃣ Testing Invalid Payload...")
        async with session.post(
            f"{base_url}/api/messages",
            data="{invalid json}",
            headers={"Content-Type": "application/json"}
        ) as resp:
            if resp.status == 400:
                print("   ✅ Invalid payload rejected")
            else:
                ok = False
                print(f"   ❌ Expected 400, got {resp.status}")

        # 5. Carga: varios mensajes concurrentes
        print("\n5️⃣ Testing Load (10 messages)...")
        start_time = time.time()
        tasks = [
            session.post(f"{base_url}/api/messages", json={"title": f"load {i}", "messageId": i % 3})
            for i in range(10)
        ]
        responses = await asyncio.gather(*tasks, return_exceptions=True)
        success_count = 0
        for response in responses:
            if isinstance(response, Exception):
                print(f"   ❌ Request failed: {response}")
                continue
            if response.status == 202:
                success_count += 1
            response.close()
        total_time = (time.time() - start_time) * 1000
        print(f"   📊 {success_count}/10 accepted in {total_time:.2f}ms")
        ok = ok and success_count == 10

        # 6. Métricas
        print("\n6️⃣ Testing Metrics...")
        async with session.get(f"{base_url}/metrics") as resp:
            data = await resp.json()
            print(f"   📈 {data.get('metrics')}")

    return ok


if __name__ == "__main__":
    url = sys.argv[1] if len(sys.argv) > 1 else BASE_URL
    passed = asyncio.run(smoke_message_producer(url))
    print("\n" + "=" * 50)
    print("✅ Smoke test completed!" if passed else "💥 Smoke test failed")
    sys.exit(0 if passed else 1)
