from mastermind import create_app, socketio

app = create_app()

if __name__ == '__main__':
    try:
        # Use SocketIO server to enable websockets in dev
        socketio.run(app, debug=True, use_reloader=False)
    finally:
        app.extensions['mastermind'].shutdown()
