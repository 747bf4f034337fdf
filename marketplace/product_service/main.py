# marketplace/product_service/main.py
from fastapi import FastAPI, HTTPException

app = FastAPI(title="Product Service (dev mock)")


PRODUCTS = {
    1: {"id": 1, "name": "Keyboard", "price": 199.99, "stock_quantity": 10, "in_stock": True, "is_active": True},
    2: {"id": 2, "name": "Mouse", "price": 49.50, "stock_quantity": 3, "in_stock": True, "is_active": True},
    3: {"id": 3, "name": "Monitor", "price": 899.00, "stock_quantity": 0, "in_stock": False, "is_active": True},
    4: {"id": 4, "name": "Webcam", "price": 79.00, "stock_quantity": 5, "in_stock": True, "is_active": False},
}


@app.get("/products/{product_id}")
def get_product(product_id: int):
    product = PRODUCTS.get(product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product
