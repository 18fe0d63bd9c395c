import unittest
from unittest.mock import patch

from fastapi.testclient import TestClient

from backend.app import app
from backend.order_composer import (
    OrderSelection,
    UnknownItemError,
    compose_order,
    format_order_message,
    order_chat_summary,
)
from backend.whatsapp_client import ERR_API, SendResult


class TestComposeOrder(unittest.TestCase):
    def test_main_extras_and_shipping(self):
        payload = compose_order(OrderSelection(
            product_id=1,
            quantity=4,
            extras={"x1": 1, "x2": 2, "p-3": 1, "x4": 0},
            shipping_method="envio",
        ))
        self.assertEqual(payload.mainItem.subtotal, 750)
        self.assertEqual([e.name for e in payload.extraItems], [
            "Anillos para servilletas (8p)",
            "Pegatinas 'Gracias' (500p)",
            "Cesta Panera Soft",
        ])
        self.assertEqual([e.total for e in payload.extraItems], [292, 170, 195])
        self.assertEqual(payload.shipping.cost, 250)
        self.assertEqual(payload.total, 750 + 292 + 170 + 195 + 250)

    def test_pickup_is_free(self):
        payload = compose_order(OrderSelection(product_id=2, shipping_method="retiro"))
        self.assertEqual(payload.mainItem.quantity, 2)
        self.assertEqual(payload.shipping.cost, 0)
        self.assertEqual(payload.total, 390)

    def test_unknown_extra(self):
        with self.assertRaises(UnknownItemError):
            compose_order(OrderSelection(product_id=1, extras={"zz": 1}, shipping_method="retiro"))

    def test_product_cannot_be_its_own_extra(self):
        with self.assertRaises(UnknownItemError):
            compose_order(OrderSelection(product_id=1, extras={"p-1": 1}, shipping_method="retiro"))


class TestOrderMessage(unittest.TestCase):
    def test_message_with_extras_and_delivery(self):
        payload = compose_order(OrderSelection(
            product_id=9, quantity=6, extras={"x3": 1}, shipping_method="envio",
        ))
        text = format_order_message(payload)
        self.assertTrue(text.startswith("*¡Hola Trama Hogar!* 👋\nNuevo pedido de presupuesto:"))
        self.assertIn("↳ *Camino Costa*", text)
        self.assertIn("↳ Cantidad: 6", text)
        self.assertIn("↳ Subtotal: $1100", text)
        self.assertIn("✨ *ARTÍCULOS EXTRAS:*", text)
        self.assertIn("↳ Pétalos de rosa (1008p) (Cant: 1) - Total item: $95", text)
        self.assertIn("↳ Envío (Costo: $250)", text)
        self.assertTrue(text.endswith("💰 *PRESUPUESTO TOTAL: $1445*"))

    def test_message_without_extras_and_pickup(self):
        payload = compose_order(OrderSelection(product_id=1, quantity=1, shipping_method="retiro"))
        text = format_order_message(payload)
        self.assertNotIn("EXTRAS", text)
        self.assertIn("↳ Retiro en Local", text)

    def test_chat_summary(self):
        payload = compose_order(OrderSelection(product_id=5, quantity=2, shipping_method="retiro"))
        self.assertEqual(
            order_chat_summary(payload),
            "He realizado un pedido de presupuesto para: 2x Set Cocina Rustik. Total: $390.",
        )


class TestOrderEndpoints(unittest.TestCase):
    def setUp(self):
        self.client = TestClient(app)

    def _valid_payload(self):
        r = self.client.post("/api/order/quote", json={"product_id": 7, "quantity": 3, "shipping_method": "retiro"})
        self.assertEqual(r.status_code, 200)
        return r.json()["order"]

    def test_quote(self):
        r = self.client.post("/api/order/quote", json={
            "product_id": 7, "quantity": 3, "extras": {"x2": 1}, "shipping_method": "envio",
        })
        self.assertEqual(r.status_code, 200)
        data = r.json()
        self.assertEqual(data["order"]["total"], 390 + 85 + 250)
        self.assertIn("Centro de Mesa Sol", data["summary"])

    def test_quote_unknown_product(self):
        r = self.client.post("/api/order/quote", json={"product_id": 42, "shipping_method": "envio"})
        self.assertEqual(r.status_code, 400)

    def test_quote_rejects_zero_quantity(self):
        r = self.client.post("/api/order/quote", json={"product_id": 1, "quantity": 0, "shipping_method": "envio"})
        self.assertEqual(r.status_code, 422)

    def test_invalid_order_payload(self):
        with patch("backend.routers.orders.send_order") as send:
            r = self.client.post("/api/order", json={"mainItem": {"name": "x"}, "total": 1})
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json(), {"success": False, "error": "Invalid data provided."})
        send.assert_not_called()

    def test_order_sent(self):
        payload = self._valid_payload()
        with patch("backend.routers.orders.send_order", return_value=SendResult(success=True)) as send:
            r = self.client.post("/api/order", json=payload)
        data = r.json()
        self.assertTrue(data["success"])
        self.assertEqual(data["message"], "Order sent successfully.")
        self.assertIn("3x Centro de Mesa Sol", data["chatMessage"])
        send.assert_called_once()

    def test_order_relay_failure(self):
        payload = self._valid_payload()
        with patch("backend.order_composer.send_text", return_value=SendResult(success=False, error=ERR_API)):
            r = self.client.post("/api/order", json=payload)
        self.assertEqual(r.json(), {"success": False, "error": "Failed to send order via API."})

    def test_catalog_endpoints(self):
        self.assertEqual(len(self.client.get("/api/products").json()["items"]), 9)
        self.assertEqual(len(self.client.get("/api/extras").json()["items"]), 4)
        self.assertEqual(len(self.client.get("/api/extras?product_id=1").json()["items"]), 12)
        self.assertEqual(self.client.get("/api/extras?product_id=99").status_code, 404)
        self.assertEqual(self.client.get("/api/price?qty=4").json(), {"qty": 4, "price": 750})
        self.assertEqual(self.client.get("/api/price?qty=0").status_code, 422)


if __name__ == "__main__":
    unittest.main()
