from kneading import create_app, get_machine, socketio

app = create_app()

if __name__ == '__main__':
    # Arm the Start scene timers before serving
    get_machine(app).ensure_started()
    # Use SocketIO server to enable websockets in dev
    socketio.run(app, debug=True, use_reloader=False)
