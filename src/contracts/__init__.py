"""Protocol constants shared by the websocket server and runtime."""
