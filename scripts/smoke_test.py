import json
from fastapi.testclient import TestClient

# Import the FastAPI app instance
from backend.app import app

def main():
    with TestClient(app) as client:
        r = client.get("/api/health")
        print("/api/health:")
        print(json.dumps(r.json(), indent=2, ensure_ascii=False))

        r2 = client.post("/api/webhook", json={"text": "Hola", "senderName": "Smoke", "timestamp": 1})
        print("/api/webhook:")
        print(json.dumps(r2.json(), indent=2, ensure_ascii=False))

        r3 = client.get("/api/chat/messages")
        print("/api/chat/messages:")
        print(json.dumps(r3.json(), indent=2, ensure_ascii=False))

        r4 = client.post("/api/order/quote", json={"product_id": 1, "quantity": 4, "shipping_method": "envio"})
        print("/api/order/quote:")
        print(json.dumps(r4.json(), indent=2, ensure_ascii=False))

if __name__ == "__main__":
    main()
