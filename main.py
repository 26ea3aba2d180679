import uvicorn

import app

if __name__ == "__main__":
    server_config = app.api_config.get('server', {})
    host = server_config.get('host', '0.0.0.0')
    port = int(server_config.get('port', 8000))

    app.logger.info(f"Serving Compliance Deadline API on {host}:{port}")
    uvicorn.run("app:app", host=host, port=port)
